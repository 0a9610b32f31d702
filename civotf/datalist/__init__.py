"""Record schemas, filtering, sorting and data-list data sources built from them."""