"""Prisma to Laravel generator command line tool."""
