"""
Move Forge - Aptos Move artifact generation and sandboxed compilation
"""

from setuptools import find_packages, setup

setup(
    name="move-forge",
    version="0.1.0",
    description="Move Forge - generate Aptos Move artifacts and verify them in disposable sandboxes",
    author="Move Forge Development Team",
    packages=find_packages(exclude=["tests*", "docs*", "archive*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.104.0",
        "uvicorn[standard]>=0.30.0",
        "pydantic>=2.0.0",
        "httpx>=0.25.0",
        "openai>=1.0.0",
        "e2b>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "mypy>=1.5.0",
            "black>=23.9.0",
            "ruff>=0.0.290",
        ],
    },
    entry_points={
        "console_scripts": [
            "move-forge=move_forge.api.server:main",
        ],
    },
)
