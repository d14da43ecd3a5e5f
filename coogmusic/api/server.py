import argparse
import os


def main():
    parser = argparse.ArgumentParser(description='CoogMusic Analytics API Server')
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind to')
    parser.add_argument('--port', type=int, default=8000, help='Port to bind to')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload')
    parser.add_argument('--log-level', default='info', help='Uvicorn log level')
    parser.add_argument('--database-url', default=None, help='Overrides COOGMUSIC_DATABASE_URL')
    args = parser.parse_args()

    if args.database_url:
        os.environ["COOGMUSIC_DATABASE_URL"] = args.database_url
    if not os.environ.get("COOGMUSIC_DATABASE_URL"):
        parser.error("COOGMUSIC_DATABASE_URL is not set (or pass --database-url)")

    import uvicorn

    uvicorn.run(
        "coogmusic.api.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
    )

if __name__ == "__main__":
    main()
