from unittest import TestLoader, TestSuite

def additional_tests():
    from . import test_fsview, test_tagfiles, test_bag

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_fsview, test_tagfiles, test_bag)]
    return TestSuite(suites)
