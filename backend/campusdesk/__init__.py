"""Application package for the CampusDesk college administration backend.

This package exposes the models, repositories, services and resource
transformers used by the FastAPI application. Individual modules
contain the concrete implementations and documentation.
"""
