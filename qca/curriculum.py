"""Fixed curriculum offered before the first selection of a session."""

from __future__ import annotations

from typing import List

QUANTUM_BANKING_TOPICS: List[str] = [
    "Implementing Shor's Algorithm in Python for RSA Factoring",
    "Quantum Error Correction (QEC) for Financial Qubits",
    "Building a Quantum Generative Adversarial Network (QGAN) for Synthetic Market Data",
    "Grover's Algorithm for Unstructured Financial Database Search",
    "Variational Quantum Eigensolver (VQE) for Portfolio Optimization",
    "The Role of Quantum Random Number Generators (QRNGs) in Monte Carlo Simulations",
    "Developing Quantum-Resistant Cryptography with Lattice-Based Methods",
    "Pseudocode for a Quantum Support Vector Machine (QSVM) for Credit Scoring",
    "Architecture of a Hybrid Quantum-Classical System for Risk Analysis",
    "Quantum Fourier Transform (QFT) in Financial Signal Processing",
    "Noise Models and Mitigation Strategies on IBM Quantum Hardware",
    "Challenges in Mapping Financial Problems to QUBO Models",
    "Exploring the HHL Algorithm for Solving Linear Systems in Finance",
    "Transpilation and Circuit Optimization for Financial Algorithms",
    "Using Quantum Annealing for Loan Portfolio Management",
    "Quantum State Tomography for Verifying Financial Models",
    "Federated Learning with Quantum Encryption for Secure Data Sharing",
    "Algorithmic Cooling for Preparing Low-Energy Quantum States",
    "Implementing a Quantum Walk for Option Pricing Models",
    "The Impact of Decoherence on Long-Running Quantum Financial Simulations",
]
