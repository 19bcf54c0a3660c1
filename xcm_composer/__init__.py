"""XCM Composer - builds multi-hop cross-chain transfer programs."""
