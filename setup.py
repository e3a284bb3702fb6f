from setuptools import setup, find_packages
import re
from pathlib import Path


def read_readme():
    this_directory = Path(__file__).parent
    readme_file = this_directory / 'README.md'
    if readme_file.exists():
        return readme_file.read_text(encoding='utf-8')
    return ""

def get_version():
    init_file = Path(__file__).parent / 'fogcontroller' / '__init__.py'
    if init_file.exists():
        match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', init_file.read_text())
        if match:
            return match.group(1)
    return "1.0.0"


setup(
    name="fogcontroller",
    version=get_version(),
    description="REST API and CLI for managing IoT fog device fleets.",
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=['fogcontroller', 'fogcontroller.*']),
    package_data={
        'fogcontroller': ['database/ddl/postgres/*.sql'],
    },
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "typer>=0.12",
        "pydantic>=2.6",
        "psycopg[binary]>=3.1",
        "psycopg-pool>=3.2",
        "PyYAML>=6.0",
        "requests>=2.31",
    ],
    extras_require={
        'test': [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Networking",
        "Topic :: Database",
    ],
    keywords="iot fog edge device fleet fastapi",
    entry_points={
        'console_scripts': [
            'fogcontroller=fogcontroller.main:app',
        ],
    },
)
