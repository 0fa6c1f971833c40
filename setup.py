from setuptools import find_packages, setup

setup(
    name="fem-elasticity",
    version="0.1.0",
    description="Element residual and Jacobian assembly for nonlinear-framework elasticity",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "mpi4py",
        "pyyaml",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "fem-elasticity=fem_elasticity.cli.run_elasticity:main",
        ],
    },
)
