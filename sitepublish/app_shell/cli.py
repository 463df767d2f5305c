import argparse
import logging
import sys
from pathlib import Path

from sitepublish.adapters.sqlite.migrator import SQLiteMigrator
from sitepublish.app_shell.config import Settings
from sitepublish.context import ServiceContext
from sitepublish.domain.errors import SitePublishError
from sitepublish.rules.loader import load_rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def get_context(settings: Settings) -> ServiceContext:
    if not settings.rules_path.exists():
        logger.error("Rules file %s not found.", settings.rules_path)
        sys.exit(1)

    rules = load_rules(settings.rules_path)
    return ServiceContext.create(settings.db_path, rules)


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    migrations_dir = Path(args.migrations_dir) if args.migrations_dir else settings.migrations_dir
    applied = SQLiteMigrator(settings.db_path, str(migrations_dir)).run_migrations()
    print(f"Applied {len(applied)} migrations to {settings.db_path}.")


def print_response(label: str, response: dict[str, object]) -> None:
    print(f"{label}: job {response['jobId']} {response['status']}")
    print(f"  delivered={response['delivered']} failures={response['failures']}")
    if response["warningMessage"]:
        print(f"  warning: {response['warningMessage']}")


def handle_publish(ctx: ServiceContext, args: argparse.Namespace) -> None:
    response = ctx.dispatch.publish(
        args.site, args.type, args.item, args.resource, args.server
    )
    if args.run:
        ctx.jobs.run_pending()
    print_response("Publish", response.to_dict())


def handle_incremental(ctx: ServiceContext, args: argparse.Namespace) -> None:
    if args.approve:
        response = ctx.dispatch.publish_incremental_with_approval(
            args.site, args.server, args.approve
        )
    else:
        response = ctx.dispatch.publish_incremental(args.site, args.server)
    if args.run:
        ctx.jobs.run_pending()
    print_response("Incremental", response.to_dict())


def handle_related(ctx: ServiceContext, args: argparse.Namespace) -> None:
    if args.items:
        related = sorted(ctx.related_items.resolve(args.items))
    else:
        related = ctx.dispatch.queued_incremental_related_content(args.site, args.server)
    print(f"{len(related)} related items.")
    for content_id in related:
        print(f"  {content_id}")


def handle_status(ctx: ServiceContext, args: argparse.Namespace) -> None:
    report = ctx.dispatch.job_status(args.job_id)
    print(f"Job {report.job_id}: {report.status}")
    print(f"  delivered={report.delivered} removed={report.removed} failed={report.failed}")
    for line in report.items:
        revision = "" if line.revision is None else f" (revision {line.revision})"
        print(f"  {line.content_id}{revision}: {line.status}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Site publishing CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Apply database migrations")
    migrate_parser.add_argument("--migrations-dir", help="Directory of .sql migrations")

    # publish
    publish_parser = subparsers.add_parser("publish", help="Publish a site or a single item")
    publish_parser.add_argument("--site", help="Site name")
    publish_parser.add_argument("--server", help="Publishing server name")
    publish_parser.add_argument("--type", help="Publish type (default FULL)")
    publish_parser.add_argument("--item", help="Item id for on-demand types")
    publish_parser.add_argument("--resource", action="store_true", help="Item is a shared resource")
    publish_parser.add_argument("--run", action="store_true", help="Run queued jobs before exiting")

    # incremental
    inc_parser = subparsers.add_parser("incremental", help="Incremental publish")
    inc_parser.add_argument("site", help="Site name")
    inc_parser.add_argument("server", help="Publishing server name")
    inc_parser.add_argument(
        "--approve", type=int, nargs="+", help="Approve these items before publishing"
    )
    inc_parser.add_argument("--run", action="store_true", help="Run queued jobs before exiting")

    # related
    related_parser = subparsers.add_parser("related", help="Show unapproved related items")
    related_parser.add_argument("--site", help="Site name (queued changes)")
    related_parser.add_argument("--server", help="Publishing server name (queued changes)")
    related_parser.add_argument("--items", type=int, nargs="+", help="Changed item ids")

    # status
    status_parser = subparsers.add_parser("status", help="Show job status")
    status_parser.add_argument("job_id", type=int, help="Job id")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings()

    if args.command == "migrate":
        handle_migrate(settings, args)
        return

    if args.command == "related" and not args.items and not (args.site and args.server):
        parser.error("related needs --items or both --site and --server")

    ctx = get_context(settings)
    try:
        if args.command == "publish":
            handle_publish(ctx, args)
        elif args.command == "incremental":
            handle_incremental(ctx, args)
        elif args.command == "related":
            handle_related(ctx, args)
        elif args.command == "status":
            handle_status(ctx, args)
    except SitePublishError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
