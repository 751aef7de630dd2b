from setuptools import find_packages, setup

setup(
    name="deploy-jenkins",
    version="0.1.0",
    packages=find_packages(
        include=[
            "jenkins_common",
            "jenkins_common.*",
            "jenkins_persistence",
            "jenkins_persistence.*",
            "jenkins_integration",
            "jenkins_integration.*",
            "jenkins_server",
            "jenkins_server.*",
            "jenkins_admin",
            "jenkins_admin.*",
        ]
    ),
    install_requires=[
        "requests>=2.31.0",
        "fastapi>=0.104.0",
        "pydantic>=2.0",
        "uvicorn>=0.24.0",
        "aiosqlite>=0.19.0",
        "click>=8.1.0",
        "cachetools>=5.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-xdist>=3.3.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "jenkins-server=jenkins_server.__main__:main",
            "jenkins-admin=jenkins_admin.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
