# setup.py

from setuptools import setup, find_packages

setup(
    name="cluster-vm-rebalancer",
    version="0.2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "openstacksdk",
        "requests",
        "PyYAML",
        "pydantic>=2",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'rebalance-vms=cluster_rebalancer.cli:main',
        ],
    },
    author="Your Name",
    author_email="your.email@example.com",
    description="Single-migration load rebalancer for OpenStack compute nodes",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    keywords="openstack virtualization load-balancing live-migration",
    python_requires=">=3.8",
)
