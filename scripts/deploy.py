#!/usr/bin/env python3
"""
Upload a finished build's output directory to object storage.

CLI wrapper for the uploader module, for build pipelines that call the
upload step as a separate command after the bundler exits. Store
credentials come from the environment (or a .env file); everything else
from an optional YAML options file and the flags below.

Usage:
    python scripts/deploy.py dist
    python scripts/deploy.py dist --config deploy.yaml
    python scripts/deploy.py dist --bucket site-assets --base-dir static --project storefront
    python scripts/deploy.py dist --no-exist-check --gzip --remove
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

# Add project root to path for imports (before other imports)
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from asset_uploader.uploader import BatchError, deploy_build_output  # noqa: E402
from asset_uploader.utils.config import StoreOptions  # noqa: E402
from asset_uploader.utils.config_loader import load_options, validate_options  # noqa: E402
from asset_uploader.utils.logging import setup_logging  # noqa: E402


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Upload build output files to object storage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Upload everything except HTML under dist/
  %(prog)s dist

  # Use an options file
  %(prog)s dist --config deploy.yaml

  # Upload under static/storefront/ in a given bucket
  %(prog)s dist --bucket site-assets --base-dir static --project storefront

  # Always upload, gzip bodies, and delete local files afterwards
  %(prog)s dist --no-exist-check --gzip --remove
        """,
    )

    parser.add_argument(
        "out_dir",
        help="Build output directory",
    )

    parser.add_argument(
        "-c",
        "--config",
        help="YAML options file (cosOptions, exclude, include, retry, ...)",
    )

    parser.add_argument(
        "-b",
        "--bucket",
        help="Target bucket (default: GCS_BUCKET or cosOptions.Bucket)",
    )

    parser.add_argument(
        "--base-dir",
        help="First segment of the remote key prefix (cosBaseDir)",
    )

    parser.add_argument(
        "-p",
        "--project",
        help="Second segment of the remote key prefix",
    )

    parser.add_argument(
        "-r",
        "--retry",
        type=int,
        help="Extra attempts per file after the first (default: 3)",
    )

    parser.add_argument(
        "--no-exist-check",
        action="store_true",
        help="Upload even when the object already exists",
    )

    parser.add_argument(
        "--gzip",
        action="store_true",
        help="Gzip file content before upload",
    )

    parser.add_argument(
        "--remove",
        action="store_true",
        help="Delete local files after a successful upload",
    )

    parser.add_argument(
        "--ignore-error",
        action="store_true",
        help="Exit 0 even if some files fail to upload",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args()


def build_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Combine the environment, the options file and CLI flags (in that order)."""
    env_store = StoreOptions.from_env()
    options: Dict[str, Any] = {
        "cosOptions": {
            key: value
            for key, value in {
                "Bucket": env_store.bucket,
                "Region": env_store.region,
                "Project": env_store.project,
                "Credentials": env_store.credentials_path,
            }.items()
            if value
        }
    }

    if args.config:
        file_options = load_options(args.config)
        for key, value in file_options.items():
            if key == "cosOptions" and isinstance(value, dict):
                options["cosOptions"].update(value)
            else:
                options[key] = value

    if args.bucket:
        options["cosOptions"]["Bucket"] = args.bucket
    if args.base_dir is not None:
        options["cosBaseDir"] = args.base_dir
    if args.project is not None:
        options["project"] = args.project
    if args.retry is not None:
        options["retry"] = args.retry
    if args.no_exist_check:
        options["existCheck"] = False
    if args.gzip:
        options["gzip"] = True
    if args.remove:
        options["removeMode"] = True
    if args.ignore_error:
        options["ignoreError"] = True
    if args.verbose:
        options["enableLog"] = True

    return options


def main():
    """Main entry point for deploy CLI."""
    args = parse_args()

    if args.verbose:
        setup_logging(level="DEBUG")

    try:
        options = build_options(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"❌ Configuration error: {e}")
        return 1

    errors = validate_options(options)
    if errors:
        print("❌ Invalid upload options:")
        for error in errors:
            print(f"  • {error}")
        return 1

    if not options["cosOptions"].get("Bucket"):
        print("❌ No bucket configured")
        print("\nSet GCS_BUCKET, pass --bucket, or add cosOptions.Bucket to the options file")
        return 1

    out_dir = Path(args.out_dir)
    if not out_dir.is_dir():
        print(f"❌ Build output directory not found: {out_dir}")
        return 1

    print(f"📤 Uploading {out_dir} to {options['cosOptions']['Bucket']}")

    try:
        run = asyncio.run(deploy_build_output(out_dir, options))
    except BatchError as e:
        print(f"❌ Upload failed: {e}")
        print(f"  Failed files: {e.failed}/{e.total}")
        return 1
    except KeyboardInterrupt:
        print("\n⚠️  Upload cancelled by user")
        return 130

    if run.result is None:
        print("⚠️  No files matched the include/exclude patterns")
        return 0

    print("\n📊 Upload Summary:")
    print(f"  Selected: {len(run.selected)}")
    print(f"  ✅ Uploaded: {run.result.succeeded - run.result.skipped}")
    print(f"  ⏭️  Already present: {run.result.skipped}")
    print(f"  ❌ Failed: {run.result.failed}")
    if run.removed:
        print(f"  🗑️  Removed locally: {len(run.removed)}")
    if run.suppressed:
        print(f"\n⚠️  Errors ignored: {run.error}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
