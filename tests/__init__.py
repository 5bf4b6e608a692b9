# Number of decimal places checked in assertAlmostEqual across the test suite
HACT_PRECISION = 8
