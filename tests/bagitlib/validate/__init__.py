from unittest import TestLoader, TestSuite

def additional_tests():
    from . import (test_base, test_complete, test_checksum, test_valid,
                   test_holey, test_oxum)

    suites = [TestLoader().loadTestsFromModule(m)
              for m in (test_base, test_complete, test_checksum, test_valid,
                        test_holey, test_oxum)]
    return TestSuite(suites)
