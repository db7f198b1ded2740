"""Backend marketplace: panier, checkout, paiement Paystack et réconciliation des commandes."""

__version__ = "0.1.0"
