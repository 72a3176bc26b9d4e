"""
MongoDB sample client.

Connects to MongoDB with an application and an admin connection, waits for the
database to answer pings, runs a fixed set of sample CRUD operations, serves
Prometheus metrics and then keeps a periodic reconciliation loop alive until the
process is asked to stop.
"""

__version__ = "0.1.0"
