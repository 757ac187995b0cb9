# Services package init
"""
RR Nagar Backend — Services Layer
===================================

Business rules between the routes (HTTP) and the models (persistence).
Every service is a stateless singleton that receives the db session and the
request Identity per call.

Service Inventory:
    - ProductService: listing, detail, creation, template cloning, deletion,
      background translation of new products
    - CategoryService: listing with translated names, creation
    - AuthService: bcrypt password login for the three account kinds
    - FileService: product image validation, storage, cleanup
    - TranslationService (abstract) / GeminiTranslationService: advisory
      translation behind a circuit breaker
"""
