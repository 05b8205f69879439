from setuptools import setup

setup(name='bagitlib',
      version='0.1',
      description="bagitlib: a Python library for creating, reading, and verifying BagIt bags",
      scripts=[ ],
      packages=['bagitlib', 'bagitlib.access', 'bagitlib.validate'],
      install_requires=['fs>=2.4', 'bagit>=1.8', 'setuptools<81'],
      extras_require={
          'test': ['pytest']
      },
      test_suite="tests.suite",
      test_runner="unittest:TextTestRunner"
)
