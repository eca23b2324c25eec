"""depcache command line interface."""
