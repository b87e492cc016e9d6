import os

# Import backend FastAPI app
from backend.app import application

# For dev convenience: run FastAPI with hot-reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("backend.app:application", host="0.0.0.0", port=int(os.getenv("PORT", "8000")), reload=True)
