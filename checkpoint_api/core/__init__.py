"""Core module - Pipeline de checkpoints anclados con Merkle.

Estructura:
- domain/        → Lecturas y resultados por batch/run
- hashing/       → Hojas Keccak-256 y raíz Merkle
- crypto/        → Envelope AES-256-GCM
- store/         → Pin del ciphertext (Pinata/IPFS)
- ledger/        → Firmante, instrucciones y cliente Solana
- pipeline/      → Orquestación secuencial por batches
- verification/  → Recalcular raíz y comparar con el ledger
"""
