from setuptools import setup, find_packages
from pathlib import Path

package_name = 'rbd-mirror-cache'
description = (
    'A Kubernetes operator component that caches rbd mirror pool status '
    'for Rook CephBlockPools with mirroring enabled.'
)
author = 'Red Hat Storage'
author_email = 'ocs-devel@redhat.com'
license = 'Apache-2.0'
url = 'https://github.com/red-hat-storage/rbd-mirror-cache'
pypi_classifiers = [
    'Development Status :: 4 - Beta',
    'License :: OSI Approved :: Apache Software License',
    'Programming Language :: Python :: 3.10'
]
keywords = ['ceph', 'rook', 'rbd-mirror']
readme = Path(__file__).parent / 'README.rst'

# Core dependencies
install_requires = [
    'kopf>=1.37',
    'kubernetes>=29.0.0',
    'pydantic>=2.5',
    'structlog>=23.1',
]

# Test dependencies
tests_require = [
    'pytest>=7.4',
]
tests_require += install_requires

extras_require = {
    'test': tests_require,
    # For development environments
    'dev': tests_require,
}

setup(
    name=package_name,
    description=description,
    long_description=readme.read_text(),
    author=author,
    author_email=author_email,
    url=url,
    license=license,
    classifiers=pypi_classifiers,
    keywords=keywords,
    package_dir={'': 'src'},
    packages=find_packages('src', exclude=['docs', 'tests']),
    python_requires='>=3.10',
    install_requires=install_requires,
    tests_require=tests_require,
    extras_require=extras_require,
    use_scm_version={'fallback_version': '0.1.0'},
    include_package_data=True
)
