# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
dnntrain training package.

Subsystems:
  - batching: deterministic mini-batch partitioning
  - evaluation: zero-one / squared error measures and whole-set evaluation
  - stopping: out-of-sample error history and the non-increase stop test
  - metrics: progress table and structured epoch records
  - engine: the epoch controller
  - interfaces: model and dataset capability protocols
"""
