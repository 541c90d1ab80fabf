# cities/data.py
"""
Algerian cities reference table.

A free, offline alternative to a places-autocomplete API: the main communes
of each wilaya with their Arabic name, wilaya code, (lat, lng) coordinates and
approximate population.
"""

from collections import namedtuple

City = namedtuple('City', ['id', 'name', 'name_ar', 'wilaya', 'wilaya_code', 'coordinates', 'population'])

ALGERIAN_CITIES = [
    City(1, "Alger", "الجزائر", "Alger", 16, (36.7538, 3.0588), 3000000),
    City(2, "Bab El Oued", "باب الواد", "Alger", 16, (36.7833, 3.0500), 150000),
    City(3, "Birkhadem", "بئر خادم", "Alger", 16, (36.7167, 3.0500), 100000),
    City(4, "Kouba", "القبة", "Alger", 16, (36.7333, 3.0833), 80000),
    City(5, "Hussein Dey", "حسين داي", "Alger", 16, (36.7333, 3.1000), 50000),
    City(6, "Cheraga", "الشراقة", "Alger", 16, (36.7667, 2.9667), 85000),
    City(7, "Draria", "الدرارية", "Alger", 16, (36.7167, 2.9833), 45000),
    City(8, "Zeralda", "زرالدة", "Alger", 16, (36.7000, 2.8333), 40000),
    City(9, "Oran", "وهران", "Oran", 31, (35.6969, -0.6331), 1000000),
    City(10, "Bir El Djir", "بئر الجير", "Oran", 31, (35.7167, -0.5833), 75000),
    City(11, "Es Senia", "السانية", "Oran", 31, (35.6500, -0.6167), 65000),
    City(12, "Arzew", "أرزيو", "Oran", 31, (35.8500, -0.3167), 70000),
    City(13, "Constantine", "قسنطينة", "Constantine", 25, (36.3650, 6.6147), 450000),
    City(14, "El Khroub", "الخروب", "Constantine", 25, (36.2833, 6.6833), 180000),
    City(15, "Ain Smara", "عين السمارة", "Constantine", 25, (36.3833, 6.6000), 90000),
    City(16, "Annaba", "عنابة", "Annaba", 23, (36.9000, 7.7667), 260000),
    City(17, "El Bouni", "البوني", "Annaba", 23, (36.8667, 7.7333), 110000),
    City(18, "Blida", "البليدة", "Blida", 9, (36.4814, 2.8277), 180000),
    City(19, "Boufarik", "بوفاريك", "Blida", 9, (36.5667, 2.9167), 60000),
    City(20, "Bougara", "بوقرة", "Blida", 9, (36.5500, 3.0833), 35000),
    City(21, "Batna", "باتنة", "Batna", 5, (35.5559, 6.1742), 290000),
    City(22, "Barika", "بريكة", "Batna", 5, (35.3833, 5.3667), 85000),
    City(23, "Sétif", "سطيف", "Sétif", 19, (36.1833, 5.4167), 290000),
    City(24, "El Eulma", "العلمة", "Sétif", 19, (36.1500, 5.6833), 120000),
    City(25, "Béjaïa", "بجاية", "Béjaïa", 6, (36.7525, 5.0556), 180000),
    City(26, "Akbou", "أقبو", "Béjaïa", 6, (36.4667, 4.5333), 52000),
    City(27, "Tlemcen", "تلمسان", "Tlemcen", 13, (34.8781, -1.3150), 140000),
    City(28, "Maghnia", "مغنية", "Tlemcen", 13, (34.8500, -1.7333), 95000),
    City(29, "Biskra", "بسكرة", "Biskra", 7, (34.8500, 5.7333), 205000),
    City(30, "Sidi Okba", "سيدي عقبة", "Biskra", 7, (34.7500, 5.8833), 35000),
    City(31, "Tizi Ouzou", "تيزي وزو", "Tizi Ouzou", 15, (36.7000, 4.0500), 145000),
    City(32, "Azazga", "عزازقة", "Tizi Ouzou", 15, (36.7333, 4.3667), 30000),
    City(33, "Sidi Bel Abbès", "سيدي بلعباس", "Sidi Bel Abbès", 22, (35.1900, -0.6400), 210000),
    City(34, "Mostaganem", "مستغانم", "Mostaganem", 27, (35.9311, 0.0900), 145000),
    City(35, "Bordj Bou Arreridj", "برج بوعريريج", "Bordj Bou Arreridj", 34, (36.0667, 4.7667), 135000),
    City(36, "Skikda", "سكيكدة", "Skikda", 21, (36.8761, 6.9086), 165000),
    City(37, "Chlef", "الشلف", "Chlef", 2, (36.1694, 1.3347), 180000),
    City(38, "Tiaret", "تيارت", "Tiaret", 14, (35.3708, 1.3225), 180000),
    City(39, "Béchar", "بشار", "Béchar", 8, (31.6167, -2.2167), 165000),
    City(40, "Médéa", "المدية", "Médéa", 26, (36.2667, 2.7500), 125000),
    City(41, "Djelfa", "الجلفة", "Djelfa", 17, (34.6667, 3.2500), 265000),
    City(42, "Jijel", "جيجل", "Jijel", 18, (36.8186, 5.7667), 131000),
    City(43, "El Oued", "الوادي", "El Oued", 39, (33.3667, 6.8667), 135000),
    City(44, "Ouargla", "ورقلة", "Ouargla", 30, (31.9500, 5.3333), 165000),
    City(45, "Touggourt", "تقرت", "Ouargla", 30, (33.1000, 6.0667), 60000),
    City(46, "Laghouat", "الأغواط", "Laghouat", 3, (33.8000, 2.8667), 135000),
    City(47, "Ghardaïa", "غرداية", "Ghardaïa", 47, (32.4833, 3.6667), 93000),
    City(48, "Tamanrasset", "تمنراست", "Tamanrasset", 11, (22.7850, 5.5228), 92635),
    City(49, "Adrar", "أدرار", "Adrar", 1, (27.8667, -0.2833), 64781),
    City(50, "Tindouf", "تندوف", "Tindouf", 37, (27.6667, -8.1333), 58000),
    City(51, "Tipaza", "تيبازة", "Tipaza", 42, (36.5833, 2.4500), 28225),
    City(52, "Koléa", "القليعة", "Tipaza", 42, (36.6333, 2.7667), 46000),
    City(53, "Boumerdès", "بومرداس", "Boumerdès", 35, (36.7667, 3.4667), 45000),
    City(54, "Dellys", "دلس", "Boumerdès", 35, (36.9167, 3.9167), 33000),
    City(55, "Bouira", "البويرة", "Bouira", 10, (36.3667, 3.9000), 75000),
    City(56, "Guelma", "قالمة", "Guelma", 24, (36.4667, 7.4333), 120000),
    City(57, "Souk Ahras", "سوق أهراس", "Souk Ahras", 41, (36.2833, 7.9500), 115000),
    City(58, "M'Sila", "المسيلة", "M'Sila", 28, (35.7000, 4.5333), 125000),
    City(59, "Mascara", "معسكر", "Mascara", 29, (35.4000, 0.1333), 110000),
    City(60, "Khenchela", "خنشلة", "Khenchela", 40, (35.4333, 7.1500), 100000),
    City(61, "Oum El Bouaghi", "أم البواقي", "Oum El Bouaghi", 4, (35.8667, 7.1167), 100000),
    City(62, "Tébessa", "تبسة", "Tébessa", 12, (35.4000, 8.1167), 195000),
    City(63, "El Tarf", "الطارف", "El Tarf", 36, (36.7667, 8.3167), 25000),
    City(64, "Saïda", "سعيدة", "Saïda", 20, (34.8500, 0.1500), 130000),
    City(65, "Relizane", "غليزان", "Relizane", 48, (35.7500, 0.5500), 130000),
    City(66, "Ain Defla", "عين الدفلى", "Ain Defla", 44, (36.2667, 1.9667), 100000),
    City(67, "Ain Temouchent", "عين تموشنت", "Ain Temouchent", 46, (35.2833, -1.1333), 70000),
    City(68, "Tissemsilt", "تيسمسيلت", "Tissemsilt", 38, (35.6167, 1.8167), 60000),
    City(69, "El Bayadh", "البيض", "El Bayadh", 32, (33.6833, 1.0167), 70000),
    City(70, "Naâma", "النعامة", "Naâma", 45, (33.2667, -0.3167), 25000),
    City(71, "Illizi", "إليزي", "Illizi", 33, (26.5000, 8.4833), 10000),
    City(72, "Mila", "ميلة", "Mila", 43, (36.4500, 6.2667), 75000),
]
