from setuptools import find_packages, setup

package_name = "autolin"

setup(
    name=package_name,
    version="0.1.0",
    packages=find_packages(exclude=["test", "test.*"]),
    data_files=[
        (
            "share/" + package_name + "/config",
            [
                "config/autolin_default.yaml",
            ],
        ),
    ],
    python_requires=">=3.9",
    install_requires=["setuptools", "numpy", "scipy", "jax", "pyyaml", "pydantic>=2"],
    extras_require={
        "test": ["pytest"],
    },
    zip_safe=True,
    description="Forward-mode linearization of manifold-valued state transforms for EKF covariance re-referencing",
    license="Apache-2.0",
    tests_require=["pytest"],
)
