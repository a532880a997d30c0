"""Multi-vendor marketplace: carts, inventory, orders and simulated payments."""
