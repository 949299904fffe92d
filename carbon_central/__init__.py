"""
carbon_central – emissions calculation core for the Carbon Central dashboard.

Pure calculation modules (emission_factors, calculations, shares, periods,
reports) have no I/O. Collaborators (db, gemini_client, insights, exports)
sit at the edges and are passed in explicitly.
"""

__version__ = "1.0.0"
