"""Credits domain - balances, FIFO spending, purchases and refunds"""
