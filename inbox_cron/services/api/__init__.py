"""
Backend API Service - FastAPI Application

Responsibilities:
- Manual batch trigger for testing and webhooks
- Single-page creation for quick checks
- Health check with schedule configuration

Endpoints:
- GET /health - Health check
- POST /trigger - Run one batch (optional {"tasks": [...]} body)
- POST /create - Create one page from a task record
"""
