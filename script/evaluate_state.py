#!/usr/bin/env python3
import json
import logging

from pygments import highlight
from pygments.formatters.terminal import TerminalFormatter
from pygments.lexers.data import JsonLexer

from fedentitlement.configure import load_configuration
from fedentitlement.filter import AttributeFilter

if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(
        description="Dry run of the entitlement filter on an authentication state")
    parser.add_argument('-f', "--format", action='store_true')
    parser.add_argument('-d', "--debug", action='store_true')
    parser.add_argument('-c', "--config", required=True, help="JSON or YAML configuration")
    parser.add_argument(dest="state", help="JSON file with the authentication state")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    _config = load_configuration(args.config)
    _filter = AttributeFilter.from_configuration(_config)

    with open(args.state) as fp:
        state = json.loads(fp.read())

    result = _filter.evaluate_state(state)

    json_str = json.dumps({"result": result.to_dict(), "Attributes": state.get("Attributes", {})},
                          indent=2)
    if args.format:
        print(highlight(json_str, JsonLexer(), TerminalFormatter()))
    else:
        print(json_str)
