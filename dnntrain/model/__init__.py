# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
dnntrain model package.

A sigmoid feed-forward network wrapped as a ModelCapability, plus atomic
save/load. The epoch controller never imports this package; the CLI wires
it in.
"""
