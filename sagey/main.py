import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sagey import config
from sagey.auth import router as auth_router
from sagey.errors import install_error_handlers
from sagey.library import router as library_router


load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)

app = FastAPI(title="Sagey Spotify API", version="0.1.0")


# Allow the configured front-end origin (e.g., Vercel) to call the API with cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

app.include_router(auth_router)
app.include_router(library_router)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("sagey.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
