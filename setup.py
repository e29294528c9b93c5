from setuptools import find_packages, setup

setup(
    name='heatdist',
    version='0.1.0',
    description='Heat method distance functions for shifted boundary methods',
    packages=find_packages(exclude=['examples', 'examples.*']),
    install_requires=[
        'numpy',
        'scipy>=1.9',
        'scikit-fem>=8',
        'pyamg',
        'matplotlib',
        'cached-property',
    ],
    extras_require={
        'test': ['pytest'],
        'mpi': ['mpi4py'],
        'gpu': ['pyamgx'],
    },
    license='LGPL',
    platforms='any',
    zip_safe=False,
)
