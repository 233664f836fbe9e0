from fastapi import APIRouter

from walletbook.api.routers import auth, categories, transactions, wallet

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(categories.router)
api_router.include_router(transactions.router)
api_router.include_router(wallet.router)
