"""astrastore CLI for configs, search, deletes and audit logs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path


def _load_config_or_exit(path: str):
    from astra_store.config_loader import load_config

    try:
        return load_config(path)
    except FileNotFoundError:
        print(f"Error: config not found: {path}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        sys.exit(1)


def _open_store(path: str):
    from astra_store.vector_store import AstraVectorStore
    from contracts.errors import VectorStoreError

    config = _load_config_or_exit(path)
    try:
        return AstraVectorStore.from_config(config)
    except VectorStoreError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate an astrastore.yaml config."""
    config = _load_config_or_exit(args.config)

    print(f"Config OK: {config.collection.name} @ {config.api_endpoint}")
    print(f"  Namespace:      {config.namespace}")
    print(f"  Dimension:      {config.collection.dimension or '(service default)'}")
    print(f"  Metric:         {config.collection.metric.value}")
    print(f"  Content attr:   {config.content_attribute}")
    vectorize = config.collection.vectorize
    print(f"  Vectorize:      {f'{vectorize.provider}/{vectorize.model_name}' if vectorize else '(none)'}")
    print(f"  Embedding:      {config.embedding.model if config.embedding else '(none)'}")
    print(f"  Init schema:    {config.initialize_schema}")
    print(f"  Bulk:           concurrency={config.bulk.concurrency} timeout={config.bulk.timeout_seconds}s")


def cmd_search(args: argparse.Namespace) -> None:
    """Run a similarity search and print matching documents."""
    from contracts.errors import VectorStoreError
    from contracts.filter import Expression
    from contracts.vector_db import SearchRequest
    from pydantic import ValidationError

    filter_expression = None
    if args.filter:
        try:
            filter_expression = Expression.model_validate_json(args.filter)
        except ValidationError as exc:
            print(f"Error: invalid filter: {exc}", file=sys.stderr)
            sys.exit(1)

    request = SearchRequest(
        query=args.query,
        top_k=args.top_k,
        similarity_threshold=args.threshold,
        filter_expression=filter_expression,
    )

    with _open_store(args.config) as store:
        try:
            docs = store.similarity_search(request)
        except VectorStoreError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)

    if not docs:
        print("No matching documents.")
        return

    for doc in docs:
        if args.json:
            print(doc.model_dump_json(exclude={"embedding"}))
        else:
            score = f"{doc.score:.4f}" if doc.score is not None else "-"
            content = (doc.content or "").replace("\n", " ")[:80]
            print(f"{score}  {doc.id}  {content}")


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete documents by id."""
    from contracts.errors import VectorStoreError

    with _open_store(args.config) as store:
        try:
            result = store.delete(args.ids)
        except VectorStoreError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)

    print(f"Deleted {result.deleted}/{result.requested} document(s) in {result.elapsed_ms:.0f} ms")


def cmd_clear(args: argparse.Namespace) -> None:
    """Delete every document of the collection."""
    from contracts.errors import VectorStoreError

    if not args.yes:
        print("Refusing to clear the collection without --yes", file=sys.stderr)
        sys.exit(1)

    with _open_store(args.config) as store:
        try:
            store.clear()
        except VectorStoreError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        print(f"Cleared collection {store.collection_name}")


def cmd_logs(args: argparse.Namespace) -> None:
    """Query audit logs."""
    from astra_store.audit.query import query_by_event, query_by_request, tail
    from contracts.audit import AuditEvent

    log_path = args.log_path

    if not Path(log_path).exists():
        print(f"No audit log found at {log_path}", file=sys.stderr)
        sys.exit(1)

    if args.request_id:
        entries = query_by_request(log_path, args.request_id)
    elif args.event:
        try:
            event = AuditEvent(args.event)
        except ValueError:
            valid = ", ".join(e.value for e in AuditEvent)
            print(f"Unknown event type: {args.event}", file=sys.stderr)
            print(f"Valid events: {valid}", file=sys.stderr)
            sys.exit(1)
        entries = query_by_event(log_path, event, limit=args.limit)
    else:
        entries = tail(log_path, n=args.limit)

    if not entries:
        print("No matching audit entries.")
        return

    for entry in entries:
        record = json.loads(entry.model_dump_json())
        if args.json:
            print(json.dumps(record))
        else:
            ts = record["ts"][:19]
            event = record["event"]
            rid = record["request_id"][:8]
            detail = json.dumps(record.get("detail", {}))
            print(f"{ts}  [{event:12s}]  {rid}  {record['collection']}  {detail}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="astrastore",
        description="astrastore: Astra DB vector store CLI",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # validate
    p_val = sub.add_parser("validate", help="Validate an astrastore.yaml config")
    p_val.add_argument(
        "config", nargs="?", default="astrastore.yaml", help="Path to config"
    )
    p_val.set_defaults(func=cmd_validate)

    # search
    p_search = sub.add_parser("search", help="Similarity search")
    p_search.add_argument("config", help="Path to config")
    p_search.add_argument("query", help="Query text")
    p_search.add_argument("--top-k", "-k", type=int, default=4, help="Max results")
    p_search.add_argument("--threshold", "-t", type=float, default=0.0, help="Min similarity")
    p_search.add_argument("--filter", "-f", help="Filter expression as JSON")
    p_search.add_argument("--json", action="store_true", help="Output raw JSON")
    p_search.set_defaults(func=cmd_search)

    # delete
    p_del = sub.add_parser("delete", help="Delete documents by id")
    p_del.add_argument("config", help="Path to config")
    p_del.add_argument("ids", nargs="+", help="Document ids")
    p_del.set_defaults(func=cmd_delete)

    # clear
    p_clear = sub.add_parser("clear", help="Delete every document")
    p_clear.add_argument("config", help="Path to config")
    p_clear.add_argument("--yes", action="store_true", help="Confirm")
    p_clear.set_defaults(func=cmd_clear)

    # logs
    p_logs = sub.add_parser("logs", help="Query audit logs")
    p_logs.add_argument("log_path", help="Path to audit JSONL file")
    p_logs.add_argument("--request-id", "-r", help="Filter by request ID")
    p_logs.add_argument("--event", "-e", help="Filter by event type")
    p_logs.add_argument("--limit", "-n", type=int, default=20, help="Max entries")
    p_logs.add_argument("--json", action="store_true", help="Output raw JSON")
    p_logs.set_defaults(func=cmd_logs)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
