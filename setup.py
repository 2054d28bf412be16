from setuptools import setup, find_packages
from pathlib import Path

package_name = 'service-binding-operator'
description = (
    'A Kubernetes Operator that binds application workloads to backing '
    'services through an intermediary secret.'
)
author = 'Service Binding Operator developers'
license = 'Apache-2.0'
url = 'https://github.com/redhat-developer/service-binding-operator'
pypi_classifiers = [
    'Development Status :: 3 - Alpha',
    'License :: OSI Approved :: Apache Software License',
    'Programming Language :: Python :: 3.10'
]
keywords = ['kubernetes', 'operator', 'olm']
readme = Path(__file__).parent / 'README.rst'

# Core dependencies
install_requires = [
    'kopf>=1.37',
    'kubernetes>=29.0.0',
    'structlog>=24.1.0',
]

# Test dependencies
tests_require = [
    'pytest>=8.0',
    'pyyaml>=6.0',
]
tests_require += install_requires

# Optional dependencies (like for dev)
extras_require = {
    # For development environments
    'dev': tests_require,
    'test': tests_require,
}

setup(
    name=package_name,
    version='0.1.0',
    description=description,
    long_description=readme.read_text(),
    author=author,
    url=url,
    license=license,
    classifiers=pypi_classifiers,
    keywords=keywords,
    python_requires='>=3.10',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    install_requires=install_requires,
    extras_require=extras_require,
    include_package_data=True
)
