from .billing_sweeper import BillingSweeper

__all__ = ["BillingSweeper"]
