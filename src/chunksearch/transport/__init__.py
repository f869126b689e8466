from .api import ChunkTransport, chunk_path, make_transport

__all__ = ["ChunkTransport", "chunk_path", "make_transport"]
