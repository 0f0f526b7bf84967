from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workflow_chat.config import setup_logging
from workflow_chat.routes import chat, health

setup_logging()

app = FastAPI(
    title="Workflow Chat Backend",
    description="Reference backend for the workflow editor chat stream",
    version="1.0.0",
)

# CORS middleware (the webview dev server proxies /api, but direct access is useful in dev)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(chat.router, prefix="/api", tags=["chat"])
