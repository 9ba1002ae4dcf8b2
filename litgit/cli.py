"""Command-line interface for lit"""
import argparse, json, logging, sys
from .errors import LitError
from .repo import Repo
from .tree import decode, format_entry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='lit')
    parser.add_argument('-v', '--verbose', action='store_true', help='log object store activity')
    parser.add_argument('-C', dest='path', default='.', help='run as if started in PATH')
    sub = parser.add_subparsers(dest='cmd')

    sub.add_parser('init')

    p_hash = sub.add_parser('hash-object')
    p_hash.add_argument('-w', action='store_true', dest='write', help='write the object into the store')
    p_hash.add_argument('-t', dest='type', default='blob')
    p_hash.add_argument('file')

    p_cat = sub.add_parser('cat-file')
    mode = p_cat.add_mutually_exclusive_group(required=True)
    mode.add_argument('-p', action='store_const', const='pretty', dest='mode', help='pretty-print the content')
    mode.add_argument('-t', action='store_const', const='type', dest='mode', help='show the object type')
    mode.add_argument('-s', action='store_const', const='size', dest='mode', help='show the object size')
    mode.add_argument('-e', action='store_const', const='exists', dest='mode', help='exit 0 if the object exists')
    p_cat.add_argument('object')

    p_ls = sub.add_parser('ls-tree')
    p_ls.add_argument('--name-only', action='store_true')
    p_ls.add_argument('tree')

    p_write = sub.add_parser('write-tree')
    p_write.add_argument('directory', nargs='?')

    p_config = sub.add_parser('config')
    p_config.add_argument('key')
    p_config.add_argument('value', nargs='?')
    return parser


def _cat_file(repo: Repo, mode: str, oid: str) -> int:
    if mode == 'exists':
        return 0 if oid in repo.objects else 1
    if mode == 'type':
        print(repo.object_info(oid)[0])
        return 0
    if mode == 'size':
        print(repo.object_info(oid)[1])
        return 0
    type_, payload = repo.cat_file(oid)
    if type_ == 'tree':
        for entry in decode(payload):
            print(format_entry(entry))
        return 0
    sys.stdout.flush()
    sys.stdout.buffer.write(payload)
    sys.stdout.buffer.flush()
    return 0


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    if args.cmd is None:
        parser.print_help(); return 2

    try:
        repo = Repo(args.path)
        if args.cmd == 'init':
            print(f'Initialized empty lit repository in {repo.init()}'); return 0
        if args.cmd == 'hash-object':
            print(repo.hash_object(args.file, type_=args.type, write=args.write)); return 0
        if args.cmd == 'cat-file':
            return _cat_file(repo, args.mode, args.object)
        if args.cmd == 'ls-tree':
            for entry in repo.ls_tree(args.tree):
                print(format_entry(entry, name_only=args.name_only))
            return 0
        if args.cmd == 'write-tree':
            print(repo.write_tree(args.directory)); return 0
        if args.cmd == 'config':
            if args.value is None:
                print(json.dumps(repo.get_config_value(args.key)))
            else:
                repo.set_config(args.key, args.value)
            return 0
    except LitError as exc:
        logger.debug('%s failed', args.cmd, exc_info=True)
        print(f'fatal: {exc}', file=sys.stderr)
        return 1

    parser.print_help(); return 2


if __name__ == '__main__':
    raise SystemExit(main())
