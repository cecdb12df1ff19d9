from setuptools import find_namespace_packages, setup

setup(
    name="lzss_codec",
    version="0.0.1",
    packages=find_namespace_packages(include=["lzss_codec", "lzss_codec.*"]),
    description="LZSS compressor/decompressor reproducing a legacy encoder byte for byte",
    license="MIT",
    install_requires=[
        "pytest",
        "numpy",
        "bitarray",
    ],
)
