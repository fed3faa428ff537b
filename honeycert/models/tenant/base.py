"""Declarative base for tables stored in tenant databases."""

from sqlalchemy.orm import declarative_base

TenantBase = declarative_base()
