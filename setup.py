from setuptools import setup

setup(name='intanrhs',
      version='0.1',
      description='tools for reading Intan RHS2000 stimulation/recording data',
      url='http://github.com/kylerbrown/intanrhs',
      author='Kyler Brown',
      author_email='kylerjbrown@gmail.com',
      license='GPL',
      packages=['intanrhs'],
      zip_safe=False,
      install_requires=[
          'numpy',
          'scipy',
          'arrow',
          'python-dateutil',
          'PyYAML',
          ],
      extras_require={
          'test': ['pytest'],
          },
      )
