from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from importlib.resources import files
from pathlib import Path


def _configure_logging() -> None:
    from invoicepdf.config import get_log_level

    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _init_config() -> None:
    """Copy the bundled sample record to the user's records directory."""
    from invoicepdf.config import get_data_dir, get_records_dir

    records_dir = get_records_dir()
    data_dir = get_data_dir()
    templates = files("invoicepdf") / "templates"

    records_dir.mkdir(parents=True, exist_ok=True)
    data_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in ["records/sample-transaction.yaml.example"]:
        dest = records_dir / Path(rel).name
        if dest.exists():
            print(f"  already exists: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  created: {dest}")
        copied += 1

    print()
    print(f"Records: {records_dir}")
    print(f"Data:    {data_dir}")
    print()
    if copied:
        print("Next steps:")
        print(f"  1. cp {records_dir / 'sample-transaction.yaml.example'} {records_dir / 'tx-001.yaml'}")
        print("  2. Edit tx-001.yaml with the invoice data")
        print("  3. Run: invoicepdf generate tx-001")
    else:
        print("No new files created (all already existed).")


def _render(record_file: str, output: str | None) -> int:
    from invoicepdf.services.composer import InvoiceComposer
    from invoicepdf.services.exceptions import InvoiceError
    from invoicepdf.services.records import load_record_file
    from invoicepdf.services.resolver import OutputResolver

    path = Path(record_file)
    if not path.is_file():
        print(f"Error: record file not found: {path}")
        return 1

    async def _run() -> Path:
        record = load_record_file(path)
        content = await InvoiceComposer.from_config().compose_async(record)
        resolver = OutputResolver()
        destination = resolver.resolve(record.id, output)
        return await resolver.write(destination, content)

    try:
        destination = asyncio.run(_run())
    except InvoiceError as e:
        print(f"Error: {e}")
        return 1
    print(f"Invoice saved to: {destination}")
    return 0


def _generate(transaction_id: str, output: str | None) -> int:
    from invoicepdf.services.exceptions import InvoiceError
    from invoicepdf.services.gateway import build_default_gateway

    try:
        destination = asyncio.run(build_default_gateway().generate(transaction_id, output))
    except InvoiceError as e:
        print(f"Error: {e}")
        return 1
    print(f"Invoice saved to: {destination}")
    return 0


def _history(invoice_id: str | None, latest: bool = False) -> int:
    from invoicepdf.utils.registry import find_latest, list_documents

    if latest:
        if not invoice_id:
            print("Error: --latest requires --invoice")
            return 1
        entry = find_latest(invoice_id)
        entries = [entry] if entry else []
    else:
        entries = list_documents(invoice_id)
    if not entries:
        print("No documents generated yet.")
        return 0
    for e in entries:
        print(f"{e['generated_at']}  {e['invoice_number']:<16} {e['transaction_id']:<20} {e['path']}")
    return 0


def _serve(host: str, port: int) -> int:
    import uvicorn

    from invoicepdf.api import create_app

    uvicorn.run(create_app(), host=host, port=port)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="invoicepdf", description="Render invoice PDFs.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="copy the sample invoice record")

    render = sub.add_parser("render", help="render a YAML record file to PDF")
    render.add_argument("record_file")
    render.add_argument("-o", "--output", default=None)

    generate = sub.add_parser("generate", help="generate the invoice for a transaction")
    generate.add_argument("transaction_id")
    generate.add_argument("-o", "--output", default=None)

    history = sub.add_parser("history", help="list generated documents")
    history.add_argument("--invoice", default=None, help="filter by invoice id")
    history.add_argument("--latest", action="store_true", help="only the most recent document")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the invoicepdf command."""
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)

    if args.command == "serve":
        sys.exit(_serve(args.host, args.port))

    _configure_logging()
    code = 0
    match args.command:
        case "init":
            _init_config()
        case "render":
            code = _render(args.record_file, args.output)
        case "generate":
            code = _generate(args.transaction_id, args.output)
        case "history":
            code = _history(args.invoice, args.latest)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
