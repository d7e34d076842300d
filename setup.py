from setuptools import setup, find_packages

# Function to read the contents of the requirements file
def read_requirements():
    with open('requirements.txt') as req:
        return [line for line in req.read().splitlines() if line and not line.startswith('#')]

setup(
    name='mvpastats',
    version='0.3.0',
    description='Split-half correlation measures and fast univariate statistics for MVPA of fMRI data',
    packages=find_packages(),
    python_requires='>=3.8',
    install_requires=read_requirements(),
    extras_require={
        'test': ['pytest'],
    },
)
