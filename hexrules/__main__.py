"""Entry point: ``python -m hexrules``.

Supports two modes:
  - ``python -m hexrules``                 → Launch the FastAPI generation server
  - ``python -m hexrules generate FILE..`` → Headless pass over a fresh region, JSON to disk
"""

from __future__ import annotations

import argparse
import logging
import sys

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "Riverside Town"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deterministic Rule-Driven Hex Generator")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI generation server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--workers", type=int, default=1)
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless generation ---
    gen = sub.add_parser("generate", help="Run templates over a fresh region and write the result")
    gen.add_argument("files", nargs="*", help="YAML template or library files loaded on top of the built-ins")
    gen.add_argument("--run", action="append", default=None, metavar="TEMPLATE",
                     help="Template to run (repeatable). Defaults to every template in FILES.")
    gen.add_argument("--seed", type=int, default=42)
    gen.add_argument("--width", type=int, default=32)
    gen.add_argument("--height", type=int, default=32)
    gen.add_argument("--terrain", type=str, default="Plain")
    gen.add_argument("--elevation", type=int, default=2)
    gen.add_argument("--workers", type=int, default=1)
    gen.add_argument("--scan-cap", type=int, default=None)
    gen.add_argument("--output", type=str, default="generation.json")
    gen.add_argument("--log-file", type=str, default=None, help="Also write a DEBUG pass log to this file")
    gen.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from hexrules.api.app import create_app
    from hexrules.config import GenerationConfig

    config = GenerationConfig(
        world_seed=args.seed,
        num_workers=args.workers,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_generate(args: argparse.Namespace) -> int:
    from pathlib import Path

    from hexrules.api.generation_service import GenerationService
    from hexrules.api.routes.generate import build_response
    from hexrules.api.schemas import GenerateRequest
    from hexrules.config import GenerationConfig
    from hexrules.core.errors import GenerationError
    from hexrules.core.rules import TemplateLibrary
    from hexrules.loader import load_builtin_library, load_library
    from hexrules.utils.logging import setup_logging

    config = GenerationConfig(
        world_seed=args.seed,
        region_width=args.width,
        region_height=args.height,
        num_workers=args.workers,
        candidate_scan_cap=args.scan_cap,
        log_level=args.log_level,
    )
    setup_logging(config.log_level, args.log_file)

    try:
        builtin = load_builtin_library()
        extra = load_library(args.files)
        library = TemplateLibrary(builtin.templates.values(), builtin.structures.values())
        for structure in extra.structures.values():
            library.add_structure(structure)
        for template in extra.templates.values():
            library.add_template(template)

        names = args.run or list(extra.templates) or [DEFAULT_TEMPLATE]
        request = GenerateRequest(
            seed=config.world_seed,
            width=config.region_width,
            height=config.region_height,
            base_terrain=args.terrain,
            base_elevation=args.elevation,
            run=names,
        )
        service = GenerationService(config, library)
        result = service.generate(request)
    except GenerationError as exc:
        logger.error("Generation failed [%s]: %s", exc.kind.name, exc)
        return 1

    response = build_response(result, request.width, request.height)
    Path(args.output).write_text(response.model_dump_json(indent=2), encoding="utf-8")

    for diagnostic in result.diagnostics:
        logger.debug("%s", diagnostic)
    logger.info(
        "Ran %s: %d cell(s) mutated, %d structure(s), %d diagnostic(s). Written to %s",
        ", ".join(names), len(result.mutated_cells), len(result.structures),
        len(result.diagnostics), args.output,
    )
    return 0


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            # Re-parse with serve defaults
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "generate":
        sys.exit(_run_generate(args))


if __name__ == "__main__":
    main()
