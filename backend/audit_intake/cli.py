from __future__ import annotations

import argparse
import json
import logging
import sys

from .client import run_analysis
from .config import settings
from .form import FormState, build_request, can_run, new_form, set_file_list, with_result
from .session import new_session_id
from .uploads import SelectedFile, Uploader


def load_form(path: str | None, session_id: str | None) -> FormState:
    form = new_form(session_id)
    if not path:
        return form
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    # Sections missing from the file keep their defaults.
    return FormState.model_validate({**form.model_dump(), **data, "sessionId": form.sessionId})


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    uvicorn.run("audit_intake.main:app", host=args.host, port=args.port)
    return 0


def cmd_new_session(args: argparse.Namespace) -> int:
    print(new_session_id())
    return 0


def cmd_submit(args: argparse.Namespace) -> int:
    form = load_form(args.form, args.session_id)
    print(f"[intake] session={form.sessionId}")
    print(f"[intake] api={args.api}")

    if args.upload:
        uploader = Uploader(api_base_url=args.api)
        batch = uploader.upload_files(
            [SelectedFile.from_path(p) for p in args.upload],
            session_id=form.sessionId,
            file_list=form.fileList,
            on_progress=lambda name, pct: print(f"[intake] upload {name} {pct}%"),
        )
        form = set_file_list(form, batch.file_list)
        print(f"[intake] {batch.message}")
        if not batch.ok:
            return 1

    if not can_run(form):
        print("[intake] customer name, email, facility area and annual kWh are required", file=sys.stderr)
        return 2

    request = build_request(form)
    print(f"[intake] files={len(request.files)} running analysis (timeout {args.timeout:.0f}s) ...")
    result = run_analysis(request.model_dump(), api_base_url=args.api, timeout=args.timeout)
    form = with_result(form, result)

    if args.json:
        print(json.dumps(result.model_dump(exclude_none=True), indent=2))
    elif result.ok:
        print(result.analysis or "")
    if form.status.kind == "err":
        print(f"[intake] {form.status.msg}", file=sys.stderr)
        return 1
    print(f"[intake] {form.status.msg}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="audit-intake", description="ASHRAE Level 1 energy audit intake.")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API (report proxy + upload presigning).")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=cmd_serve)

    new = sub.add_parser("new-session", help="Print a fresh session id.")
    new.set_defaults(func=cmd_new_session)

    submit = sub.add_parser("submit", help="Upload supporting files and run the analysis.")
    submit.add_argument("--form", help="JSON file with customer/facility/energy/targets/fileList sections.")
    submit.add_argument("--upload", nargs="*", default=[], help="Files to upload before submitting.")
    submit.add_argument("--session-id", default=None, help="Reuse a session id instead of starting a new one.")
    submit.add_argument("--api", default=settings.api_base_url, help="Base URL of the intake API.")
    submit.add_argument("--timeout", type=float, default=settings.analysis_timeout_seconds)
    submit.add_argument("--json", action="store_true", help="Print the full normalized response.")
    submit.set_defaults(func=cmd_submit)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
