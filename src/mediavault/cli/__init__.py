"""MediaVault command line interface."""
