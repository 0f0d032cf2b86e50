from setuptools import setup, find_packages

setup(
    name="proforma_service",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "migrations", "migrations.*"]),
    install_requires=[
        "fastapi",
        "python-jose[cryptography]",
        "sqlalchemy[asyncio]>=2.0",
        "asyncpg",
        "pydantic[email]>=2",
        "alembic",
        "reportlab",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "aiosqlite",
            "httpx",
        ],
    },
)
