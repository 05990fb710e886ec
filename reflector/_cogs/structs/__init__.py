"""
All the structures to manipulate the objects' fields and references.

All the functions are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
