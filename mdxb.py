import argparse
import json
import os
import sys

from mdx_bundler import (
    BundleMDXOptions,
    InMemoryOutput,
    MDXBundlerError,
    WrittenOutput,
    bundle_mdx_sync,
    get_mdx_component,
    render_to_string,
)
from mdx_bundler.log import debug_log, log, set_verbose


def read_files(directory):
    """Collect every file under ``directory`` as relative path -> text."""
    files = {}
    for root, _, names in os.walk(directory):
        for name in sorted(names):
            path = os.path.join(root, name)
            relative = './' + os.path.relpath(path, directory).replace(os.sep, '/')
            with open(path, 'r', encoding='utf-8') as f:
                files[relative] = f.read()
    debug_log(f"Loaded {len(files)} files from {directory}")
    return files


def parse_globals(entries):
    result = {}
    for entry in entries or []:
        module, sep, var_name = entry.partition('=')
        if not sep or not module or not var_name:
            raise ValueError(f"Invalid --global '{entry}', expected MODULE=VARIABLE")
        result[module] = var_name
    return result


def bundle(args):
    if args.filename == "-":
        source = sys.stdin.read()
    elif not os.path.exists(args.filename):
        print(f"Error: File '{args.filename}' not found.", file=sys.stderr)
        sys.exit(1)
    else:
        with open(args.filename, 'r', encoding='utf-8') as f:
            source = f.read()

    options = BundleMDXOptions(
        files=read_files(args.files) if args.files else {},
        globals=parse_globals(args.globals),
        mock_resolve_component=args.mock_resolve_component,
        cwd=args.cwd,
        output=WrittenOutput(outdir=args.outdir) if args.outdir else InMemoryOutput(),
    )
    return bundle_mdx_sync(source, options)


def cmd_bundle(args):
    result = bundle(args)
    payload = json.dumps(result.model_dump(), indent=2, default=str)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(payload)
        log(f"Wrote {args.output}")
    else:
        print(payload)


def cmd_render(args):
    result = bundle(args)
    component = get_mdx_component(result.code)
    print(render_to_string(component, {'frontmatter': result.frontmatter}))


def main(argv=None):
    parser = argparse.ArgumentParser(description="MDX bundler CLI")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    subparsers = parser.add_subparsers(dest="command")

    for name, help_text in (("bundle", "Bundle a document to {code, frontmatter} JSON"),
                            ("render", "Bundle a document and print its HTML")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("filename", nargs="?", default="-", help="MDX file (default: read from stdin)")
        sub.add_argument("--files", help="Directory whose files are made available to the document")
        sub.add_argument("--cwd", help="Directory on-disk imports are resolved from")
        sub.add_argument("--global", dest="globals", action="append", metavar="MODULE=VARIABLE",
                         help="Provide MODULE through the global VARIABLE instead of bundling it")
        sub.add_argument("--mock-resolve-component", action="store_true",
                         help="Resolve unknown components to their names without the runtime")
        sub.add_argument("--outdir", help="Let the bundler write its output here (it is removed afterwards)")
    subparsers.choices["bundle"].add_argument("--output", help="Write the JSON result to this file")

    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    try:
        if args.command == "bundle": cmd_bundle(args)
        elif args.command == "render": cmd_render(args)
        else: parser.print_help()
    except (MDXBundlerError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
