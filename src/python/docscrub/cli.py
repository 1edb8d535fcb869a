import argparse, json, sys

from .batch import anonymize_batch
from .config import CLI_ARG_PAIRS
from .unified_anonymizer import build_options, run_unified_anonymization, setup_logging
from . import pipeline


def _add_container_flags(parser):
    for flag, name in CLI_ARG_PAIRS:
        kind = name.replace("process_", "").replace("_", " ")
        parser.add_argument(flag, dest=name, action="store_false", help=f"Do not process {kind}")


def _selected_flags(args):
    return [flag for flag, name in CLI_ARG_PAIRS if not getattr(args, name, True)]


def _min_length(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid length '{value}'")
    if n < 1:
        raise argparse.ArgumentTypeError("Minimum match length must be >= 1")
    return n


def build():
    p = argparse.ArgumentParser(prog="docscrub", description="docscrub: strip designations and names from DOCX files")
    sp = p.add_subparsers(dest="cmd", required=True)

    a = sp.add_parser("anonymize", help="Anonymize one DOCX file")
    a.add_argument("--in", dest="inp", required=True)
    a.add_argument("--out", dest="out", required=True)
    a.add_argument("--report", dest="report", default=None)
    a.add_argument("--single-pass", action="store_true", help="Skip the organization code removal pass")
    a.add_argument("--min-length", type=_min_length, default=None, help="Minimum match length for the first pass")
    _add_container_flags(a)
    a.add_argument("--debug", action="store_true")
    a.add_argument("--log", default=None, help="Log file path (optional)")

    b = sp.add_parser("batch", help="Anonymize several files into a directory")
    b.add_argument("--out-dir", dest="out_dir", required=True)
    b.add_argument("--single-pass", action="store_true")
    b.add_argument("--min-length", type=_min_length, default=None)
    _add_container_flags(b)
    b.add_argument("--debug", action="store_true")
    b.add_argument("files", nargs="+")
    return p


def _run_anonymize(a) -> int:
    result = run_unified_anonymization(
        input_path=a.inp,
        output_path=a.out,
        report_path=a.report,
        two_pass=not a.single_pass,
        min_length=a.min_length,
        flags=_selected_flags(a),
        debug=a.debug,
        log_path=a.log,
    )
    if result['success']:
        print("✅ Anonymization completed successfully")
        print(f"   Matches: {result['matches_processed']}/{result['matches_found']}")
        if result['extracted_codes']:
            print(f"   Organization codes removed: {', '.join(result['extracted_codes'])}")
        for warning in result['warnings']:
            print(f"   ⚠️  {warning}")
        print(f"   Processing time: {result['duration']:.2f}s")
        return 0
    print(f"❌ Anonymization failed: {result['error']}", file=sys.stderr)
    return result['exit_code']


def _run_batch(a) -> int:
    setup_logging(a.debug)
    flags = _selected_flags(a)
    config = two_pass_config = None
    if a.single_pass:
        config = pipeline.create_default_configuration()
        config.options = build_options(config.options, flags, a.min_length)
    else:
        two_pass_config = pipeline.create_code_removal_configuration()
        two_pass_config.first_pass.options = build_options(two_pass_config.first_pass.options, flags, a.min_length)
        two_pass_config.second_pass.options = build_options(two_pass_config.second_pass.options, flags)
    batch = anonymize_batch(
        a.files,
        a.out_dir,
        two_pass=not a.single_pass,
        config=config,
        two_pass_config=two_pass_config,
        debug=a.debug,
    )
    print(json.dumps(batch.to_dict(), indent=2, ensure_ascii=False))
    return 0 if batch.success else 1


def main(argv=None):
    a = build().parse_args(argv)
    try:
        if a.cmd == "anonymize":
            sys.exit(_run_anonymize(a))
        elif a.cmd == "batch":
            sys.exit(_run_batch(a))
    except KeyboardInterrupt:
        print("Operation cancelled by user", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
