from typing import List
import argparse
import json
import sys

from social.graze.webfinger.model.store import ConfigError, ConfigStore, Snapshot
from social.graze.webfinger.resolve.resource import (
    IssuerAnnouncement,
    ResolutionError,
    resolve_resource,
)


def realMain() -> int:
    parser = argparse.ArgumentParser(
        prog="resolve", description="Resolve WebFinger resources against a config file"
    )
    parser.add_argument("config", help="Path to the YAML configuration file.")
    parser.add_argument(
        "resource",
        nargs="*",
        help="The resource(s) to resolve. Resolves the default subject if omitted.",
    )
    parser.add_argument("--rel", default=None, help="Only return this relation.")

    args = vars(parser.parse_args())

    try:
        snapshot: Snapshot = ConfigStore(args["config"]).load()
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    resources: List[str] = args.get("resource") or [""]
    status = 0

    for resource in resources:
        try:
            resolution = resolve_resource(snapshot, resource, args.get("rel"))
        except ResolutionError as e:
            print(f"{resource or '(default)'}: {e}", file=sys.stderr)
            status = 1
            continue

        if isinstance(resolution, IssuerAnnouncement):
            print(f"{resolution.subject}: Host: {resolution.host}")
        else:
            print(json.dumps(resolution.to_jrd(), indent=2))

    return status


def main() -> None:
    sys.exit(realMain())


if __name__ == "__main__":
    main()
