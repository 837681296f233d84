from setuptools import find_namespace_packages, setup

setup(
    name='zonestack',
    version='0.1',
    py_modules=['zonestack'],
    packages=find_namespace_packages(include=['stackcore', 'stackcore.*']),
    install_requires=[
        'Click',
        'python-hcl2',
        'PyYAML',
        'graphviz',
        'ipaddr'
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points='''
        [console_scripts]
        zonestack=zonestack:cli
    ''',
)
