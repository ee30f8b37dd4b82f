import argparse
import logging
import sys

from .core.config import BuildContext, split_list
from .core.errors import GoModelError
from .core.model import open_directory_by_path


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


logger = logging.getLogger(__name__)


def describe(directory) -> str:
    """Render the packages, records, fields and methods of a directory."""
    lines = []
    for package in directory.packages:
        lines.append(f"package {package.name} ({package.path}) - {len(package.files)} file(s)")
        for record in package.records():
            lines.append(
                f"  struct {record.name}: {len(record.fields())} field(s), "
                f"{len(record.methods())} method(s)"
            )
            for field in record.fields():
                if package.type_info is not None:
                    lines.append(f"    {field.index}: {field.name} {field.type}")
                else:
                    lines.append(f"    {field.index}: {field.name}")
    return "\n".join(lines)


def main(argv=None):
    """Main entry point for gomodel."""
    parser = argparse.ArgumentParser(description="gomodel - inspect the packages of a Go source tree")
    parser.add_argument(
        "path",
        type=str,
        help="Package path: absolute, ./relative, or an import path under a root"
    )
    parser.add_argument(
        "--root",
        action="append",
        default=[],
        help="Lookup root searched before GOPATH/GOROOT (repeatable)"
    )
    parser.add_argument(
        "--tags",
        type=str,
        default="",
        help="Comma-separated build tags to add"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML build context file (instead of the environment)"
    )
    parser.add_argument(
        "--include-tests",
        action="store_true",
        help="Include _test.go files and test packages"
    )
    parser.add_argument(
        "--files-only",
        action="store_true",
        help="Skip type checking"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    context = BuildContext.from_yaml(args.config) if args.config else BuildContext.from_env()
    if args.root:
        context = context.with_roots(args.root)
    context.tags.update(split_list(args.tags))

    try:
        directory = open_directory_by_path(
            args.path,
            context,
            include_test_files=args.include_tests,
            include_test_package=args.include_tests,
            files_only=args.files_only,
        )
    except GoModelError as e:
        logger.error(str(e))
        return 1

    print(describe(directory))
    return 0


if __name__ == "__main__":
    sys.exit(main())
