"""
Static Pages module (block-based CMS core).

- Pages carry a mutable draft (header + blocks) and an optional published snapshot
- Publishing validates the whole draft and promotes a deep copy, or changes nothing
- Blocks carry two independent lock bits (structure, content)
- Notice blocks are system-owned and managed only by the notice sync boundary
- Every mutation bumps the page revision and is recorded to the audit trail
"""
