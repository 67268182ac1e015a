from setuptools import setup, find_packages

setup(
    name="zeitdao",
    version="0.1.0",
    description="ZeitDao small-group governance engine: propose, vote, execute by quorum",
    author="Zeitgeist",
    python_requires=">=3.9",
    packages=find_packages(include=["zeitdao", "zeitdao.*"]),
    install_requires=["pyyaml>=6.0.0", "structlog>=22.2.0"],
    extras_require={
        "api": ["fastapi>=0.110.0", "uvicorn>=0.23.0"],
        "dev": ["pytest>=7.4.0", "fastapi>=0.110.0", "uvicorn>=0.23.0", "httpx>=0.24.0"],
    },
    entry_points={"console_scripts": ["zeitdao=zeitdao.cli:main"]},
    include_package_data=True,
    package_data={
        "zeitdao": [
            "charters/*.yaml",
        ]
    },
    keywords=["dao", "governance", "quorum", "voting", "cli"],
    license="Apache-2.0",
)
