from setuptools import setup, find_packages
setup(
    name='response-envelope',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    include_package_data=True,
    description='Response envelopes with lazy, pluggable deserialization for HTTP client SDKs.',
    python_requires='>=3.9',
    install_requires=[
        'invoke>=2.0.0',
        'pyyaml>=6.0',
        'requests>=2.25.0',
        'pydantic>=2.0.0',
        'fastapi>=0.100.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'httpx>=0.24.0',
        ],
    },
    entry_points={
        'pytest11': [
            'response_envelope = response_envelope.pytest_plugin',
        ],
    },
)
