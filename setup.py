#!/usr/bin/env python

import os
import re
from setuptools import setup


def load_readme():
    with open('README.rst', 'r') as fd:
        return fd.read()


def load_requirements():
    """Parse requirements.txt"""
    reqs_path = os.path.join('.', 'requirements.txt')
    with open(reqs_path, 'r') as fd:
        requirements = [line.rstrip() for line in fd]
    return requirements


package_name = 'accesstop'

with open(os.path.join(os.path.dirname(__file__), package_name, '__init__.py')) as f:
    version = re.search("__version__ = '([^']+)'", f.read()).group(1)


setup(name=package_name,
      version=version,
      description='top for nginx access logs: parse, aggregate and query access log fields',
      long_description=load_readme(),
      classifiers=[
          'Development Status :: 4 - Beta',
          'Environment :: Console',
          'Intended Audience :: System Administrators',
          "Intended Audience :: Developers",
          'License :: OSI Approved :: BSD License',
          "Operating System :: OS Independent",
          "Programming Language :: Python :: 3",
          'Topic :: Internet :: Log Analysis',
          'Topic :: System :: Systems Administration'],
      license='BSD 3-Clause "New" or "Revised" License',

      packages=['accesstop'],
      install_requires=load_requirements(),
      extras_require={'test': ['pytest']},
      entry_points={
          'console_scripts': ['accesstop = accesstop.__main__:main'],
      },
      test_suite="tests",
      )
