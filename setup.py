"""
Setup script for HomeNet.

Usage:
    pip install -e .
    pip install -e ".[test]"

Installs the `homenet` console command.
"""
from setuptools import setup

PACKAGES = [
    'config',
    'discovery',
    'gatekeeper',
    'storage',
    'service',
    'app',
]

INSTALL_REQUIRES = [
    'psutil>=5.9',
    'python-dateutil>=2.8',
    'zeroconf>=0.100',
    'scapy>=2.6',
    'requests>=2.28',
]

EXTRAS_REQUIRE = {
    'test': [
        'pytest>=7.0',
    ],
}

setup(
    name='homenet',
    version='1.0.0',
    description='Home network device discovery and filtering DNS forwarder',
    packages=PACKAGES,
    py_modules=['homenet'],
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    python_requires='>=3.9',
    entry_points={
        'console_scripts': [
            'homenet=homenet:main',
        ],
    },
)
