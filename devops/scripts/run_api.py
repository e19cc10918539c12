"""
Script para ejecutar la API REST del XR Training Core

Este script inicia el servidor FastAPI con uvicorn.

Uso:
    python devops/scripts/run_api.py              # Modo desarrollo
    python devops/scripts/run_api.py --production # Modo producción
"""
import argparse

APP_PATH = "xrtraining.api.main:app"


def run_dev_server(port: int = 8000):
    """Ejecuta servidor en modo desarrollo con auto-reload"""
    import uvicorn

    print("=" * 80)
    print("XR Training Core - Development Server")
    print("=" * 80)
    print(f"Server: http://localhost:{port}")
    print(f"Swagger UI: http://localhost:{port}/docs")
    print("=" * 80)

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        reload=True,  # Auto-reload en cambios
        log_level="info",
        access_log=True,
    )


def run_production_server(port: int = 8000, workers: int = 4):
    """Ejecuta servidor en modo producción"""
    import uvicorn

    print("=" * 80)
    print("XR Training Core - Production Server")
    print("=" * 80)
    print(f"Server: http://localhost:{port} ({workers} workers)")
    print("=" * 80)

    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        reload=False,
        workers=workers,
        log_level="warning",
        access_log=True,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run XR Training Core API Server")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Run in production mode (no auto-reload, multiple workers)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run the server on (default: 8000)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=4,
        help="Worker processes in production mode (default: 4)",
    )

    args = parser.parse_args()

    if args.production:
        run_production_server(args.port, args.workers)
    else:
        run_dev_server(args.port)
