"""Run ua-nodeset-codegen as Python module."""

import sys

import ua_nodeset_codegen.main

if __name__ == "__main__":
    # The ``prog`` needs to be set in the argparse.
    # Otherwise the program name in the help shown to the user will be ``__main__``.
    sys.exit(ua_nodeset_codegen.main.main(prog="ua_nodeset_codegen"))
