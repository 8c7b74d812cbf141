"""
JobMatch backend.

Core components:
- agents: Resume parser, Job Search Engine, Orchestrator
- tools: PDF text, search providers, payments, email
- storage: Session store (in-memory or Redis)
- api: FastAPI application
"""
