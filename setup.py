#!/usr/bin/env python
import setuptools

setuptools.setup(
    name="effectwire",
    version="0.1.0",
    description="dependency injection for generator-based business logic",
    long_description=open('README.rst').read(),
    author="effectwire contributors",
    license="MIT",
    classifiers=[
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Framework :: AsyncIO',
        ],
    packages=['effectwire'],
    python_requires='>=3.8',
    install_requires=['attrs'],
    extras_require={
        'test': ['pytest', 'pytest-asyncio', 'testtools'],
        'docs': ['sphinx', 'sphinx_rtd_theme'],
        },
    )
