"""Command line front end: decode a YAML file and print the result.

    python -m yamlbind config.yaml
    python -m yamlbind --json --strict config.yaml
    python -m yamlbind --header syntax/go.yaml
"""

import argparse
import datetime
import json
import logging
import pprint
import sys

from . import MapSlice, YAMLError, unmarshal
from .error import MarkedYAMLError
from .syntax import parse_header

_LOGGER = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, (datetime.datetime, datetime.timedelta)):
        return str(value)
    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')
    raise TypeError("%s is not JSON serializable" % type(value).__name__)


def _jsonable(value):
    # JSON objects need string keys and have no ordered-pairs type
    if isinstance(value, MapSlice):
        return [[_jsonable(item.key), _jsonable(item.value)] for item in value]
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def build_parser():
    parser = argparse.ArgumentParser(prog='yamlbind',
                                     description='Decode the first document of a YAML file.')
    parser.add_argument('file', nargs='?', default='-',
                        help="input file, '-' for standard input (default)")
    parser.add_argument('--strict', action='store_true',
                        help='report duplicate keys')
    parser.add_argument('--json', action='store_true',
                        help='print the result as JSON')
    parser.add_argument('--header', action='store_true',
                        help='read the file as a syntax definition and print its header')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log debug messages to standard error')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(name)s: %(message)s')

    if args.file == '-':
        data = sys.stdin.buffer.read()
        name = '<stdin>'
    else:
        try:
            with open(args.file, 'rb') as stream:
                data = stream.read()
        except OSError as exc:
            print('yamlbind: %s' % exc, file=sys.stderr)
            return 2
        name = args.file
    _LOGGER.debug("read %d byte(s) from %s", len(data), name)

    try:
        if args.header:
            header = parse_header(data)
            result = {
                'filetype': header.filetype,
                'filename': header.filename_regex.pattern if header.filename_regex else None,
                'header': header.header_regex.pattern if header.header_regex else None,
                'signature': header.signature_regex.pattern if header.signature_regex else None,
            }
        else:
            result = unmarshal(data, strict=args.strict, name=name)
    except MarkedYAMLError as exc:
        print(exc.summary(), file=sys.stderr)
        return 1
    except YAMLError as exc:
        print(exc, file=sys.stderr)
        return 1

    if args.json:
        json.dump(_jsonable(result), sys.stdout, indent=2, default=_json_default)
        sys.stdout.write('\n')
    else:
        pprint.pprint(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
