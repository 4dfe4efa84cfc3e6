from setuptools import setup

setup(
    name='optimus-ids',
    version='1.0',
    description='Reversible integer ID obfuscation using Knuth\'s multiplicative hashing.',
    python_requires='>=3.9',
    py_modules=[
        'config',
        'core_logic',
        'generator',
        'models',
        'mymath',
        'obfuscation',
        'prime_sources',
    ],
    install_requires=[
        'httpx',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest', 'respx'],
    },
)
