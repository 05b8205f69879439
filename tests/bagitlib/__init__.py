from unittest import TestLoader, TestSuite

def additional_tests():
    from . import test_constants, test_hashing, test_progress, test_holes

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_constants, test_hashing, test_progress, test_holes)]
    return TestSuite(suites)
