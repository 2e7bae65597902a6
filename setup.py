from setuptools import find_packages, setup

setup(
    name="stream-haven-backend",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app", "bootloader", "database"],
    install_requires=[
        "fastapi",
        "uvicorn",
        "python-multipart",
        "SQLAlchemy>=2.0",
        "psycopg2-binary",
        "pydantic>=2",
        "bcrypt",
        "python-jose[cryptography]",
        "aiohttp",
        "python-dotenv",
        "PyYAML",
        "APScheduler>=3.10,<4",
        "limits",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    description="Backend package for Stream Haven (accounts, watchlists and catalog sync)",
    entry_points={
        "console_scripts": ["stream-haven=bootloader:main"],
    },
)
