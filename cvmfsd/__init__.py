"""cvmfsd - docker volume plugin and flexvolume driver for CVMFS.

Transport layer over cvmfs_library: a FastAPI application speaking the
docker volume plugin protocol on a unix socket, and a click CLI.
"""

__version__ = "0.1.0"
