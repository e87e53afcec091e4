from setuptools import find_namespace_packages, setup

setup(
    name="pystitch",
    version="0.1.0",
    description="Compose server-rendered component fragments into static, hydration-ready markup.",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["pystitch*"]),
    install_requires=[
        "beautifulsoup4>=4.12",
        "jinja2>=3.1",
        "lxml>=5.0",
        "rich>=13.0",
        "rich-click>=1.7",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "pystitch=pystitch.cli.main:cli",
        ],
    },
    zip_safe=False,
)
