from setuptools import setup, find_packages


def readme():
    with open('README.md') as f:
        return f.read()


INSTALL_REQUIRES = ['numpy', 'numba', 'joblib', 'scikit-learn']
EXTRAS_REQUIRE = {
    'tests': [
        'pytest',
        'pytest-cov'],
}

if __name__ == "__main__":
    setup(name="tgl",
          version="0.1.0",
          description="Temporal group lasso multi-task regression.",
          long_description=readme(),
          long_description_content_type="text/markdown",
          packages=find_packages(),
          python_requires=">=3.7",
          install_requires=INSTALL_REQUIRES,
          extras_require=EXTRAS_REQUIRE,
          )
