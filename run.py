#!/usr/bin/env python3
"""
Simple script to run the Salary Ledger API
"""

import uvicorn
from salary_ledger.core.config import settings

if __name__ == "__main__":
    print("🚀 Starting Salary Ledger...")
    print(f"📱 App: {settings.app_name}")
    print(f"🌐 Host: {settings.host}")
    print(f"🔌 Port: {settings.port}")
    print(f"🔧 Debug: {settings.debug}")
    print(f"📐 Rate aggregation: {settings.rate_aggregation}")
    print(f"📚 API Documentation: http://localhost:{settings.port}/docs")
    print("-" * 50)

    uvicorn.run(
        "salary_ledger.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info"
    )
