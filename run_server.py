import uvicorn
import os

if __name__ == "__main__":
    host = os.getenv("TTD_HOST", "127.0.0.1")
    port = int(os.getenv("TTD_PORT", "8000"))

    print("Starting Timeline Debugger API...")
    print(f"Docs available at: http://{host}:{port}/docs")

    uvicorn.run(
        "timetravel.api.server:app",
        host=host,
        port=port,
        reload=True
    )
