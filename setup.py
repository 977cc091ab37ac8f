from setuptools import setup

import io,os
this_directory = os.path.abspath(os.path.dirname(__file__))
with io.open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name="flashhypo",
    version="0.1",
    include_package_data=True,
    description='Flash hypothesis of charged particle trajectories in LArTPC detectors',
    license='MIT',
    keywords='Optical flash hypothesis from photon libraries in LArTPC experiments',
    scripts=['bin/flashhypo_make_hypothesis.py'],
    packages=['flashhypo','flashhypo.algorithms','flashhypo.datatypes','flashhypo.utils'],
    package_data={'flashhypo': ['config/*.yaml']},
    install_requires=[
        'numpy',
        'torch',
        'pyyaml',
        'fire',
        'photonlib',
        'slar',
    ],
    extras_require={
        'test': ['pytest', 'h5py'],
    },
    long_description=long_description,
    long_description_content_type='text/markdown',
)
