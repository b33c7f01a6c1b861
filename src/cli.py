#!/usr/bin/env python3
"""
Complaint Audit Layer Command Line Interface.

Provides commands for running and inspecting the audit layer:
    - serve: Start the API server
    - check: Verify installation and configuration
    - info: Display system information
    - tools: Print the operation manifest for tool-calling agents

Usage:
    audit-layer serve [--host HOST] [--port PORT] [--debug] [--production]
    audit-layer check
    audit-layer info
    audit-layer tools
    audit-layer --version
"""

import argparse
import os
import sys

from complaint_registry import __version__


def cmd_serve(args):
    """Start the audit layer API server."""
    from dotenv import load_dotenv

    load_dotenv()

    from api import create_app
    from monitoring import configure_logging

    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", 5000))
    debug = args.debug or os.getenv("FLASK_DEBUG", "").lower() == "true"

    print(f"Starting Complaint Audit Layer API server on {host}:{port}")

    flask_app = create_app()

    if args.production:
        try:
            import gunicorn.app.base
        except ImportError:
            print(
                "Error: gunicorn not installed. Install with: pip install complaint-audit-layer[production]"
            )
            sys.exit(1)

        class StandaloneApplication(gunicorn.app.base.BaseApplication):
            """Gunicorn WSGI wrapper around the Flask application."""

            def __init__(self, app, options=None):
                self.options = options or {}
                self.application = app
                super().__init__()

            def load_config(self):
                for key, value in self.options.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)

            def load(self):
                return self.application

        # The registry lives in process memory: one worker, many threads
        options = {
            "bind": f"{host}:{port}",
            "workers": 1,
            "threads": args.threads or int(os.getenv("THREADS", 4)),
            "worker_class": "gthread",
            "timeout": 120,
            "accesslog": "-",
            "errorlog": "-",
        }
        StandaloneApplication(flask_app, options).run()
    else:
        flask_app.run(host=host, port=port, debug=debug)


def cmd_check(args):
    """Check installation and configuration."""
    print("Complaint Audit Layer Installation Check")
    print("=" * 40)

    checks = []

    try:
        from complaint_registry import ComplaintRegistry

        ComplaintRegistry()
        checks.append(("Complaint registry", "OK"))
    except ImportError as e:
        checks.append(("Complaint registry", f"FAIL: {e}"))

    try:
        from api import create_app  # noqa: F401

        checks.append(("Flask API", "OK"))
    except ImportError as e:
        checks.append(("Flask API", f"FAIL: {e}"))

    try:
        from storage import StorageError, get_storage_backend

        storage = get_storage_backend()
        backend_name = storage.__class__.__name__
        status = "OK" if storage.is_available() else "WARN (not available)"
        checks.append((f"Storage ({backend_name})", status))
    except StorageError as e:
        checks.append(("Storage", f"FAIL: {e}"))

    try:
        import gunicorn  # noqa: F401

        checks.append(("Gunicorn (production)", "OK"))
    except ImportError:
        checks.append(("Gunicorn (production)", "SKIP (gunicorn not installed)"))

    print()
    all_ok = True
    for name, status in checks:
        icon = "✓" if status == "OK" else ("○" if "SKIP" in status else "✗")
        print(f"  {icon} {name}: {status}")
        if "FAIL" in status:
            all_ok = False

    print()
    if all_ok:
        print("All checks passed!")
        return 0
    print("Some checks failed. See above for details.")
    return 1


def cmd_info(args):
    """Display system information."""
    import platform

    print("Complaint Audit Layer System Information")
    print("=" * 40)
    print(f"Version: {__version__}")
    print(f"Python: {platform.python_version()}")
    print(f"Platform: {platform.platform()}")

    print()
    print("Configuration:")
    print(f"  STORAGE_BACKEND: {os.getenv('STORAGE_BACKEND', 'json (default)')}")
    print(f"  AUDIT_LAYER_DATA_FILE: {os.getenv('AUDIT_LAYER_DATA_FILE', 'complaints_data.json (default)')}")
    print(f"  AUDIT_LAYER_REQUIRE_AUTH: {os.getenv('AUDIT_LAYER_REQUIRE_AUTH', 'true (default)')}")
    print(f"  AUDIT_LAYER_API_KEY: {'configured' if os.getenv('AUDIT_LAYER_API_KEY') else 'not set'}")
    print(f"  AUDIT_LAYER_VALIDATE_TIMESTAMPS: {os.getenv('AUDIT_LAYER_VALIDATE_TIMESTAMPS', 'false (default)')}")
    print(f"  LOG_LEVEL: {os.getenv('LOG_LEVEL', 'INFO (default)')}")
    print(f"  LOG_FORMAT: {os.getenv('LOG_FORMAT', 'console (default)')}")

    print()
    print("Storage:")
    try:
        from storage import get_storage_backend

        for key, value in get_storage_backend().get_info().items():
            print(f"  {key}: {value}")
    except Exception as e:
        print(f"  Error: {e}")

    return 0


def cmd_tools(args):
    """Print the operation manifest as JSON."""
    from operation_manifest import prompts, tools_json

    if args.prompts:
        import json

        print(json.dumps(prompts(), indent=2))
    else:
        print(tools_json())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audit-layer",
        description="Complaint Audit Layer - complaint and proof registry",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to bind to (default: 5000)")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve_parser.add_argument(
        "--production", action="store_true", help="Use gunicorn for production"
    )
    serve_parser.add_argument("--threads", type=int, help="Worker threads (production mode)")

    subparsers.add_parser("check", help="Check installation and configuration")
    subparsers.add_parser("info", help="Display system information")

    tools_parser = subparsers.add_parser("tools", help="Print the operation manifest")
    tools_parser.add_argument(
        "--prompts", action="store_true", help="Print the prompt catalogue instead"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "check":
        sys.exit(cmd_check(args))
    elif args.command == "info":
        sys.exit(cmd_info(args))
    elif args.command == "tools":
        sys.exit(cmd_tools(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
