import sys

from rich.pretty import pprint

from pennant import *


if __name__ == '__main__':
    parser = Parser.from_env(colorful=True)
    parser.declare_bool("verbose", "this is used to get verbose output")
    parser.declare_required_value("num", "this is a required flag")

    try:
        remaining = parser.finalize()
    except ParserExit as fault:
        parser.report(fault)
        parser.print_help()
        sys.exit(1)

    pprint({
        "verbose": parser.get_value("verbose"),
        "num": parser.get_value("num", default=""),
        "remaining": remaining,
    })

    parser.print_help(sys.stdout)
