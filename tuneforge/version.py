# Copyright (c) US Inc. All rights reserved.
__version__ = '1.0.0'
__product_name__ = 'Tuneforge'
